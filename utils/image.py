import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from mpl_toolkits.axes_grid1 import make_axes_locatable
import numpy as np


class ImageChartGenerator:
    def __init__(self, img, xlabel: str, ylabel: str,
                 save_path_result: str, need_show: bool = True,
                 range_max: float = None, range_min: float = None):
        # create the frame
        self.fig = None
        self.ax = None
        self.figsize = (16, 9)
        self.dpi = 100
        self.pad_inches = 0.3
        self.fontsize = 18

        # data for image
        self.img = img

        # axis captions
        self.xlabel = xlabel
        self.ylabel = ylabel

        # colour range; falls back to the data range
        finite = np.asarray(img, dtype=np.float64)
        finite = finite[np.isfinite(finite)]
        self.min = range_min if range_min is not None else (float(finite.min()) if finite.size else 0.0)
        self.max = range_max if range_max is not None else (float(finite.max()) if finite.size else 1.0)

        # save folder and name
        self.save_path_result = save_path_result
        self.need_show = need_show
        self.photo_name = None

    def create_disparity(self, photo_name=None):
        self.photo_name = "disparity" if photo_name is None else photo_name
        self._setup_figure()
        cmap_ = plt.get_cmap('jet').copy()
        cmap_.set_bad(color="black")

        im1 = self.ax.imshow(self.img, cmap=cmap_, vmin=self.min, vmax=self.max)

        # color bar ------------------------------------------
        divider = make_axes_locatable(self.ax)
        cax = divider.append_axes("right", size="5%", pad=self.pad_inches)
        ticks = np.linspace(self.min, self.max, 5)
        cbar = self.fig.colorbar(im1, ax=self.ax, cax=cax, ticks=ticks)
        cbar.ax.tick_params(labelsize=self.fontsize)
        return self._output()

    def create_labels(self, label_names, photo_name=None):
        self.photo_name = "labels" if photo_name is None else photo_name
        self._setup_figure()
        # valid / mismatch / occluded
        cmap_ = ListedColormap(["#2ca02c", "#ff7f0e", "#1f1f1f"][:len(label_names)])
        im1 = self.ax.imshow(self.img, cmap=cmap_, vmin=-0.5, vmax=len(label_names) - 0.5,
                             interpolation="nearest")

        divider = make_axes_locatable(self.ax)
        cax = divider.append_axes("right", size="5%", pad=self.pad_inches)
        cbar = self.fig.colorbar(im1, ax=self.ax, cax=cax, ticks=range(len(label_names)))
        cbar.ax.set_yticklabels(label_names)
        cbar.ax.tick_params(labelsize=self.fontsize)
        return self._output()

    def _setup_figure(self):
        self.fig, self.ax = plt.subplots(figsize=self.figsize, dpi=self.dpi)
        self.ax.set_xlabel(self.xlabel, fontsize=self.fontsize)
        self.ax.set_ylabel(self.ylabel, fontsize=self.fontsize)
        self.ax.tick_params(labelsize=self.fontsize)

    def _output(self):
        path = f'{self.save_path_result}/{self.photo_name}.jpg'
        self.fig.savefig(path, bbox_inches='tight', pad_inches=self.pad_inches)
        if self.need_show:
            plt.show()
        plt.close(self.fig)
        return path
